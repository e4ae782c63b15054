from advance_api.cli import main

main()
