from values_stack.cli import main

raise SystemExit(main())
