from focal_crop.app import main

main()
