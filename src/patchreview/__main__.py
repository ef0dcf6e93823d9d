from patchreview.cli import main

raise SystemExit(main())
