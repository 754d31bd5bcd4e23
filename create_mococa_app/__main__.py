from create_mococa_app.cli import run

run()
