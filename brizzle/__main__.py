from brizzle.cli import main

main()
