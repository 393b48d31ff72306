"""
Care Guide Notes API — Services Layer
=======================================

What:  Business rules between the routes (HTTP) and the database.

Service Inventory:
    - AuthService: login and password change
    - UserService: registration, profiles, role/status rules, reports
    - NoteService: personal notes with owner/admin access rules
    - PostService: the community feed

List methods take a session factory and return (rows, PaginationMeta) built
by QueryBuilder; everything else takes the request's AsyncSession.
"""
