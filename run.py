# -*- coding: utf-8 -*-

"""
Entry point for trying the shelf browse controller against a live catalog page.

Usage: python run.py <shelf browse page URL>
"""

import logging
import sys
import tkinter as tk

from shelf_browse.app import create_controller
from shelf_browse.core.exceptions import TransportError
from shelf_browse.core.services import FetchService
from shelf_browse.logging_config import setup_logging
from shelf_browse.ui.host import TkHost
from shelf_browse.ui.view import ViewDocument


def main():
    """
    Configure logging, fetch the page and attach the controller to it.
    """
    setup_logging()
    if len(sys.argv) < 2:
        print(__doc__)
        return 2
    url = sys.argv[1]

    try:
        markup = FetchService().get_text(url)
    except TransportError as exc:
        logging.error("Could not load %s: %s", url, exc)
        return 1

    root = tk.Tk()
    root.title("Shelf Browse")
    root.geometry("1024x640")

    host = TkHost(root, lambda: url)
    controller = create_controller(host, ViewDocument.from_html(markup), base_url=url)
    if not controller.start_page(url):
        logging.warning("%s is not a shelf browse page", url)
    logging.info("Shelf browse state: %s", controller.debug_snapshot())

    root.mainloop()
    controller.detach()
    return 0


if __name__ == '__main__':
    status = main()
    logging.info("===== Application terminated =====")
    sys.exit(status)
