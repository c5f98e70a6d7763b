from pawnvault.main import main

main()
