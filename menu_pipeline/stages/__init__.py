"""
Pipeline stages, in run order:

  1  discover    — Places search per neighborhood → restaurants
  2  enrich      — Place details (website, phone, summary)
  3  find_menus  — crawl websites for a menu page or PDF
  4  extract     — menu page / PDF → raw_menus text
  5  analyze     — AI dietary labels → menu_items

Each stage module exposes run(...) and returns a small stats dict.
"""
