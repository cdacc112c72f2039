from procspawn.cli import main

raise SystemExit(main())
