from tchart.cli import run

run()
