"""
Care Guide Notes API — Routes Package
=======================================

What:  HTTP route handlers. Handlers stay thin: read the request, call a
       service, wrap the result with send_response().

Route Inventory (all under /api/v1 except health):
    - auth.py:    /auth/login, /auth/logout, /auth/change-password
    - users.py:   /user/...
    - notes.py:   /notes, /notes/all-notes, /notes/{id}
    - posts.py:   /posts, /posts/{id}
    - health.py:  GET /health
"""

from fastapi import APIRouter

from careguide.routes import auth, notes, posts, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(notes.router)
api_router.include_router(posts.router)
