from repo_prompt.cli import main

raise SystemExit(main())
