"""CLI entry point for the FunPay seller app.

All command logic lives in the cli subpackage.
"""

from funpay_tools.apps.funpay.cli import app

__all__ = ["app", "main"]


def main() -> None:
    """Run the FunPay CLI application."""
    app()


if __name__ == "__main__":
    main()
