from gpxstats.analyze.gpx_analyze import main

raise SystemExit(main())
