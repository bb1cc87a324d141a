"""Module entrypoint to run SiteKeeper via `python -m sitekeeper`."""

from sitekeeper.cli import main


def run() -> None:
    """Dispatch to the console script handler."""

    main()


if __name__ == "__main__":  # pragma: no cover
    run()
