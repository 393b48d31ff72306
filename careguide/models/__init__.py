# Importing every model here registers it on Base.metadata (Alembic, create_all)
from careguide.models.note import Note, Priority
from careguide.models.post import Post
from careguide.models.user import IsActive, PRIVILEGED_ROLES, Role, User

__all__ = ["Note", "Priority", "Post", "User", "Role", "IsActive", "PRIVILEGED_ROLES"]
