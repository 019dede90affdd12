"""
AppleScripts for macOS notifications.
"""

#: Display a notification in Notification Centre.
display_notification_script = '''on run argv
set n_title to item 1 of argv
set n_body to item 2 of argv
display notification n_body with title n_title
end run'''
