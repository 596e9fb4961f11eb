from numeris.cli.app import main_menu
from numeris.db import close_connection, initialize_db
from numeris.logging import configure_logging, reconfigure


def main() -> None:
    configure_logging()
    initialize_db()
    reconfigure()
    try:
        main_menu()
    finally:
        close_connection()


if __name__ == "__main__":
    main()
