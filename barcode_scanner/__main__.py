from barcode_scanner.cli import main

raise SystemExit(main())
