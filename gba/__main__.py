from gba.cli.app import main

main()
