# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Button event stages
# device level:
# stage 0: watch evdev devices and the virtual button fifo, issue RawTransitions into one channel
# stage 1: decode RawTransitions into ButtonEvents, stamped with the gap since the previous event

# pattern level:
# stage 2: append to the pattern buffer, trim expired/stuck prefixes, drop contact chatter
# stage 3: match the buffer against the action table and dispatch
