"""Entry point for the attendance ledger API server."""

import uvicorn

from attendance_ledger.utils.config import get_settings


def main() -> None:
    """Start the uvicorn server with configuration from config.yaml."""
    settings = get_settings()
    config = settings.load_config()
    server_cfg = config.get("server", {})

    uvicorn.run(
        "attendance_ledger.api.app:app",
        host=server_cfg.get("host", "0.0.0.0"),
        port=server_cfg.get("port", 5000),
        reload=server_cfg.get("reload", False),
    )


if __name__ == "__main__":
    main()
