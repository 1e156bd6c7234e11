from relief_engine.cli import main

raise SystemExit(main())
