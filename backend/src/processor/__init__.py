# Wait Time Tracker - Processor Package
