from gosnap.cli import main

main()
