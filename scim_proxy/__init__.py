"""SCIM dialect proxy package.

To use the Flask app:
    from scim_proxy.flask_app import create_app

To use the transformation engine on its own:
    from scim_proxy.core.scim_transformer import normalize
"""
# Note: We don't import flask_app by default to avoid Flask dependency
# for CLI scripts that only use scim_proxy.core
