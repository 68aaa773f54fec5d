# arch_plan/__main__.py
from arch_plan.cli import app


def main():
    """
    Main application
    """
    app()


if __name__ == "__main__":
    main()
