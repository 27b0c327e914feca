"""ftapi -- OAuth2 client library for the 42 intra API.

The package wraps the handful of endpoints needed to authenticate against
``https://api.intra.42.fr`` and read the signed-in user's profile:

* application tokens through the client-credentials grant, cached and
  refreshed on expiry;
* user tokens through the authorization-code grant (browser redirect URL
  plus code exchange);
* the ``/v2/me`` profile resource.

Typical usage::

    from ftapi.client import FtClient

    with FtClient.from_app("my_uid", "my_secret") as client:
        url = client.get_authorization_url(callback, ["public", "profile"])
        ...
        token = client.fetch_access_token(code, callback)
        user = client.fetch_user_data(token)

Modules:
    client: Blocking and async API clients.
    models: Pydantic models for tokens, users, errors and configuration.
    credentials: The two credential modes a client can hold.
    exceptions: Exception hierarchy with exit-code mapping.
    config: XDG-aware configuration and credential source resolution.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"
