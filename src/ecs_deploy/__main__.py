from ecs_deploy.cli import main

raise SystemExit(main())
