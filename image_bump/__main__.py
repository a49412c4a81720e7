"""Run the image-bump command line tool with `python -m image_bump`."""

from image_bump.tool.image_bump import main

main()
