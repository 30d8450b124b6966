"""auth/ -- Identity models, credentials, claims, authorization guard, and user storage.

Layer rule: auth/ imports only core/, stdlib, and third-party libraries.
It does NOT import from directory/ or admin/.
directory/ imports from auth/, not the other way around.
"""
