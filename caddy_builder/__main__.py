from caddy_builder.runner import main

if __name__ == "__main__":
    main()
