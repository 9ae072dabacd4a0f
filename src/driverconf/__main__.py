from driverconf.cli import main

raise SystemExit(main())
