from platform_monitor.cli import main

raise SystemExit(main())
