from journal_api.server import main

main()
