# Wait Time Tracker - Utilities Package
