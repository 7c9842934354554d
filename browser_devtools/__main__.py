from browser_devtools.server import main

main()
