from wavecli.cli import main

main(prog_name="wave")
