"""auth/ -- Authentication package for PrivateDiary.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or diary/.
api/ and diary/ import from auth/, not the other way around.
"""
