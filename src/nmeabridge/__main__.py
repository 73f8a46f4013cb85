from nmeabridge.cli import main

raise SystemExit(main())
