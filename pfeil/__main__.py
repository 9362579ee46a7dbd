from pfeil.cli import main

raise SystemExit(main())
