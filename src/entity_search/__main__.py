from entity_search.cli import main


raise SystemExit(main())
