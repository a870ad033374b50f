"""pipeshell CLI bootstrap."""

from pipeshell.cli import app

if __name__ == "__main__":
    app()
