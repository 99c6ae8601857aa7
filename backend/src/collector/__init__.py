# Wait Time Tracker - Collector Package
