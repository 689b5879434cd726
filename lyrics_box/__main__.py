from lyrics_box.cli import main

main()
