from build_report_inspector.cli import main

main()
