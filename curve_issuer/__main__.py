from curve_issuer.cli import main

main()
