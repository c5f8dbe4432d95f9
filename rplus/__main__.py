from rplus.cli import run

run()
