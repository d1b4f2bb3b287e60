from bannerscan.cli import main

main()
