from .app import AppLimitEnforcerApp


def main() -> None:
    AppLimitEnforcerApp().run()


if __name__ == "__main__":
    main()
