from scaffoldkit.cli import main

main()
