"""
Serve the API with uvicorn.
Usage: python -m loandesk   (HOST/PORT come from the environment)
"""
import uvicorn

from loandesk.core.settings import settings


def main() -> None:
    uvicorn.run(
        "loandesk.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        log_config=None,
    )


if __name__ == "__main__":
    main()
