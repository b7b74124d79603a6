from dualstack_echo.main import main


if __name__ == '__main__':
    main()
