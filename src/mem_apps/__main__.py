from mem_apps.cli import main

main()
