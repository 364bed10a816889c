"""Allow running as python -m i18nxy."""


def main() -> None:
    from i18nxy.cli import app
    app()


main()
