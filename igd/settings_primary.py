"""
Settings for the primary API service.

The primary service runs the same escort app against the same database as
the gateway, but exposes the class-based API flavour and has no routing
layer of its own: it is the target the gateway forwards to.
"""
from .settings import *  # noqa: F401,F403
from .settings import BACKEND_ROUTING_MIDDLEWARE, MIDDLEWARE, env_flag

ROOT_URLCONF = "igd.urls_primary"
API_BACKEND_NAME = "primary"

MIDDLEWARE = [m for m in MIDDLEWARE if m != BACKEND_ROUTING_MIDDLEWARE]

# Requests arrive through the gateway, which appends the caller address
TRUST_X_FORWARDED_FOR = env_flag("TRUST_X_FORWARDED_FOR", "1")

ALLOWED_HOSTS = ALLOWED_HOSTS + ["localhost", "127.0.0.1"]  # noqa: F405

# Session counters are kept by the gateway, which also counts forwarded calls
ESCORT_SESSION_ACTIVITY = False
