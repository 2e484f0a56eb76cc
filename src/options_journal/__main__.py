from options_journal.cli import main

main()
