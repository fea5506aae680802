"""Development server: a single pounce worker serving the live App.

Block views, scripts, and styles sit next to the block modules, so the
reloader watches those suffixes as well as Python files.
"""


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_include: tuple[str, ...] = (),
    reload_dirs: tuple[str, ...] = (),
    log_level: str = "info",
    app_path: str | None = None,
) -> None:
    """Serve *app* with pounce until interrupted.

    ``pounce.Server`` takes the App object itself. With *app_path*
    (``"module:attribute"``) pounce re-imports it on every reload, so edits
    to block modules take effect without a restart.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        reload_dirs=reload_dirs,
        log_level=log_level,
    )
    Server(config, app, app_path=app_path).run()
