from contrib_leaderboard.cli import main

raise SystemExit(main())
