from splitledger import create_app
app = create_app()
if __name__ == "__main__":
    app.logger.info("Starting splitledger API on 0.0.0.0:5000 (reachable from devices on the LAN)")
    app.run(host='0.0.0.0', port=5000, debug=True)
