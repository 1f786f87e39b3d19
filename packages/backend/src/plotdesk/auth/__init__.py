"""Authentication and authorization.

Learn: Dashboard users carry a signed bearer token (HS256, 30 day expiry).
The same token authenticates REST calls (Authorization header) and the
realtime websocket handshake (?token= query param, since browsers cannot
set headers on the upgrade request). Both resolve to a Principal.
"""
