from ecs_discoverer.cli import main

main()
