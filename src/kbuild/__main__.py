from kbuild.app import run

run()
