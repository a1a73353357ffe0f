from xcresult_explorer.cli import main

main()
