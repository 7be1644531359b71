"""Run the StationPlay server: python -m stationplay"""

from stationplay.main import main

if __name__ == "__main__":
    main()
