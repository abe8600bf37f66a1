from branchsync.main import main

raise SystemExit(main())
