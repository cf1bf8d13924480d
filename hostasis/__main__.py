from hostasis.cli import main

raise SystemExit(main())
