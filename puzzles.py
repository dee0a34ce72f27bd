"""
Built-in Sokoban levels, grouped by box count.

The groups line up with the heuristic tiers: under 6 boxes, 6-7 boxes and
8 or more.

Standard format:
  # = wall, ' ' = floor, . = goal, $ = box, @ = player,
  * = box on goal, + = player on goal
"""

PUZZLES: dict[str, str] = {}

# ------------------------------------------------------------------
# Fewer than 6 boxes
# ------------------------------------------------------------------

PUZZLES["One Box"] = """\
####
#. #
#$ #
#@ #
####"""

PUZZLES["One Box Wide"] = """\
######
#.   #
# $  #
#  @ #
######"""

PUZZLES["Around the Corner"] = """\
######
#    #
# $# #
#  . #
#@   #
######"""

PUZZLES["Two Box Line"] = """\
######
#    #
# @  #
# $$ #
# .. #
######"""

PUZZLES["Two Box Across"] = """\
######
# .  #
#  $ #
# $  #
#  . #
# @  #
######"""

PUZZLES["Three Down"] = """\
#######
#     #
# $$$ #
#     #
# ... #
#  @  #
#######"""

PUZZLES["Four Down"] = """\
########
#      #
# $$$$ #
#      #
# .... #
#  @   #
########"""

PUZZLES["Five in a Row"] = """\
#########
#       #
# $$$$$ #
#       #
# ..... #
#   @   #
#########"""

# ------------------------------------------------------------------
# 6-7 boxes
# ------------------------------------------------------------------

PUZZLES["Six Down"] = """\
##########
#        #
# $$$$$$ #
#        #
# ...... #
#    @   #
##########"""

PUZZLES["Seven Half Done"] = """\
###########
#         #
# *$*$*$* #
#         #
#  . . .  #
#    @    #
###########"""

# ------------------------------------------------------------------
# 8 boxes and up
# ------------------------------------------------------------------

PUZZLES["Eight Down"] = """\
############
#          #
# $$$$$$$$ #
#          #
# ........ #
#     @    #
############"""


def get_puzzle_names() -> list[str]:
    """Return all puzzle names in order."""
    return list(PUZZLES.keys())


def get_puzzle(name: str) -> str:
    """Return the level text for a named puzzle.  Raises KeyError."""
    return PUZZLES[name]


def box_count(name: str) -> int:
    text = PUZZLES[name]
    return text.count("$") + text.count("*")
