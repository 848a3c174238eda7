"""python -m rss_shell 入口."""

from rss_shell.main import main

if __name__ == "__main__":
    main()
