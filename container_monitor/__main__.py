from container_monitor.main import main

main()
