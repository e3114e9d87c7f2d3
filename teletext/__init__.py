"""
Teletext page service: 24x40 pages of news, sport, markets, weather, AI and games
"""
