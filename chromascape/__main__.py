from chromascape.orchestrator.healthcheck import main

raise SystemExit(main())
