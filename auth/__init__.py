"""auth/ -- Authentication and secret-protection core for DragonFruit.

passwords.py  Argon2id hashing, verification, key derivation
totp.py       RFC 4226/6238 one-time passwords
tokens.py     signed, self-expiring session tokens
crypto.py     reversible protection of stored credential passwords
dependencies.py  Authorization header -> user id (the auth boundary)

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or vault/.
api/ imports from auth/, not the other way around.
"""
