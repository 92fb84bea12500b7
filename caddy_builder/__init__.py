"""
caddy_builder — custom Caddy builds with plugins.

Assemble a build descriptor from a Caddy version plus ``--with`` plugin
references, hand it to the Go toolchain, and run the result.
"""

__version__ = "0.1.0"
BUILDER_NAME = "xcaddy"
CADDY_MODULE = "github.com/caddyserver/caddy/v2"
