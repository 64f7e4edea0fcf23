from goosectl.cli import main

main()
