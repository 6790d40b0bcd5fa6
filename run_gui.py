#!/usr/bin/env python3
"""
NET-WATCHER - Wi-Fi Presence Scanner Console

Launch the PyQt6 operator console.

Usage:
    python run_gui.py
    python run_gui.py --config scenarios/living_room.yaml

Features:
    - Signal strength heatmap over the floor plan
    - Sonar sweep with echoes, ping rings and phosphor persistence
    - Disturbance gauge, waveform, quality history and event log
    - Floor plan loading and saving (YAML)
"""

import argparse
import logging
import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    """Launch the NET-WATCHER GUI."""
    parser = argparse.ArgumentParser(description="NET-WATCHER operator console")
    parser.add_argument("--config", type=str, default=None, help="YAML floor plan file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-7s %(message)s")

    print("=" * 60)
    print("NET-WATCHER - Wi-Fi Presence Scanner Console")
    print("=" * 60)
    print()

    # Check dependencies
    try:
        from PyQt6.QtWidgets import QApplication

        print("✓ PyQt6 OK")
    except ImportError:
        print("✗ PyQt6 not installed. Run: pip install PyQt6")
        return 1

    try:
        import pyqtgraph

        print("✓ PyQtGraph OK")
    except ImportError:
        print("✗ PyQtGraph not installed. Run: pip install pyqtgraph")
        return 1

    try:
        from netwatcher.simulation.objects import create_default_room

        create_default_room().signal_field
        print("✓ Signal field OK")
    except ImportError as e:
        print(f"✗ Scanner core error: {e}")
        return 1

    print()
    print("Starting GUI...")
    print("=" * 60)

    import yaml
    from PyQt6.QtGui import QColor, QPalette

    from netwatcher.ui.main_window import MainWindow

    app = QApplication(sys.argv[:1])
    app.setStyle("Fusion")

    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(2, 6, 23))
    palette.setColor(QPalette.ColorRole.WindowText, QColor(103, 232, 249))
    palette.setColor(QPalette.ColorRole.Base, QColor(2, 6, 23))
    palette.setColor(QPalette.ColorRole.Text, QColor(103, 232, 249))
    palette.setColor(QPalette.ColorRole.Button, QColor(8, 47, 73))
    palette.setColor(QPalette.ColorRole.ButtonText, QColor(103, 232, 249))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(7, 89, 133))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor(165, 243, 252))
    app.setPalette(palette)

    try:
        window = MainWindow(scenario_path=args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
